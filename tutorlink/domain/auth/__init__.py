"""Auth domain - accounts, login and one-time codes"""
