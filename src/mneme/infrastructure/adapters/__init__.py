from .word_file import FileWordSource, WordSourceError

__all__ = ["FileWordSource", "WordSourceError"]
