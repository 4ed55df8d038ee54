"""Application wiring: configuration, dependencies and the FastAPI app"""
