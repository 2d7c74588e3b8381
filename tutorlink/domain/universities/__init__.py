"""Universities domain - partner schools and their email domains"""
