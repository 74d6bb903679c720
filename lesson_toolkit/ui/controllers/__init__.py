"""UI controllers package for Lesson Toolkit.

Controllers mediate between a front-end and the underlying services and
models.
"""

from .lesson_controller import LessonController

__all__: list[str] = ["LessonController"]
