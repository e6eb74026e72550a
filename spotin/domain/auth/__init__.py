"""Auth domain - Staff and client sign-in, staff accounts"""
