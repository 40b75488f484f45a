"""GreenGrove Market order, booking and payment API"""
__version__ = "1.0.0"
