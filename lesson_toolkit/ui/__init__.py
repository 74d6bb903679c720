"""UI-facing layer of Lesson Toolkit (controllers only, no toolkit code)."""
