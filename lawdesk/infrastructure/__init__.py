"""
Infrastructure layer: configuration and structured logging.
"""
