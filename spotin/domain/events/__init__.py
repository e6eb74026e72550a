"""Events domain - Community events and registrations"""
