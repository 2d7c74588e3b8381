"""Landing domain - public stats and the contact form"""
