"""Uploads domain - file metadata checks"""
