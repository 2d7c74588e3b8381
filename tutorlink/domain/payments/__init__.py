"""Payments domain - proof-of-payment review"""
