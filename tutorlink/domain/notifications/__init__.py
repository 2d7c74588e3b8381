"""Notifications domain - in-app notification feed"""
