"""Domain schemas - request and record contracts grouped by business area"""
