# Game2048 - Sliding tile puzzle engine
# exceptions.py - Custom exceptions for the 2048 game engine

class InvalidDirectionException(Exception):
    """Raised when a move direction cannot be parsed."""
    pass

class InvalidTileValueException(Exception):
    """Raised when a tile value is not a power of two >= 2."""
    pass

class StorageException(Exception):
    """Raised when the key-value store cannot be read or written."""
    pass
