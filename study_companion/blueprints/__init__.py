from .generation import generation_bp
from .translation import translation_bp
from .videos import videos_bp
from .syllabus import syllabus_bp
from .groups import groups_bp
from .notes import notes_bp

__all__ = ['generation_bp', 'translation_bp', 'videos_bp', 'syllabus_bp', 'groups_bp', 'notes_bp']
