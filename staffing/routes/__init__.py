from .consultants import consultants_bp
from .projects import projects_bp
from .schedules import schedules_bp
from .assignments import assignments_bp
from .availability import availability_bp
from .utils import utils_bp

__all__ = [
    'consultants_bp', 'projects_bp', 'schedules_bp',
    'assignments_bp', 'availability_bp', 'utils_bp'
]
