"""Courses domain - courses per university and their subjects"""
