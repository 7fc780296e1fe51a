"""Appointments domain - remote records, list pagination and calendar windows"""
