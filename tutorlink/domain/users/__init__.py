"""Users domain - accounts, profiles and the signed-in user's bookings"""
