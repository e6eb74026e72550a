"""Check-ins domain - Front desk check-in and checkout"""
