"""Tickets domain - Day-use tickets and free drinks"""
