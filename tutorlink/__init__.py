"""TutorLink tutoring marketplace API"""

__version__ = "1.0.0"
