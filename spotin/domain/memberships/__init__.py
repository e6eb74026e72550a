"""Memberships domain - Plans and client memberships"""
