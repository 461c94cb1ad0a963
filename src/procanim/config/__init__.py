"""Rig tuning constants"""
