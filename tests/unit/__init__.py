"""Unit tests for the parking lot core and its application layer"""
