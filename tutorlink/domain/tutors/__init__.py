"""Tutors domain - applications, availability and bookings"""
