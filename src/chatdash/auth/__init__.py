"""Authentication.

Users register with username/email/password and log in for a JWT pair.
Route dependencies turn the Bearer token into a CurrentIdentity; the
chat core only ever asks "who is calling, if anyone?".
"""
