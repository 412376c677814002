"""
Utilities Package for Trickle Monitor

- logger      loguru setup and component loggers
- helpers     time helpers
- validators  address and domain validation
"""
