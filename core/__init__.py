"""Core application for the clinic portal.

Models, services, serializers, views and route registrations behind the
patient, doctor, nurse and scholar APIs.
"""
