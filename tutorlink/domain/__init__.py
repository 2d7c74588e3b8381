"""TutorLink domain packages"""
