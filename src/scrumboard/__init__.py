"""ScrumBoard - Scrum and Kanban project tracker"""

__version__ = "0.1.0"
