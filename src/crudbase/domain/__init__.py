"""Domain layer - collection definitions and the services derived from them.

This layer has no dependency on the HTTP framework.
"""
