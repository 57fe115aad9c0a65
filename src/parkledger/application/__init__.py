"""Application layer: DTOs, the parking service and commands"""
