from screenwarp.api.pipeline import ScreenResult, process_screen, process_screens

__all__ = [
    "ScreenResult",
    "process_screen",
    "process_screens",
]
