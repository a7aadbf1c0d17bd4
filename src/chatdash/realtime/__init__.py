"""Real-time delivery — in-process WebSocket fan-out.

Learn: Events flow one way: ChatGateway → ConnectionRegistry.broadcast()
→ every open WebSocket on this process. There is no cross-process
pub/sub; running several API replicas would need a shared channel
(e.g. Redis PUBLISH) in front of each replica's registry.
"""
