"""Accounts domain - registration, login, profile and data-rights requests"""
