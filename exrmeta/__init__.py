"""Binary I/O, texts, rectangles, channel lists and time codes for OpenEXR headers."""

__version__ = "0.1.0"

__all__ = ["binio", "channels", "math", "text", "timecode"]