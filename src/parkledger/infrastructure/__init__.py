"""Infrastructure: in-process messaging and object wiring"""
