"""Notifications domain - send requests, event payloads and user preferences"""
