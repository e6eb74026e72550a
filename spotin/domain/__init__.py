"""Domain modules, one package per business area"""
