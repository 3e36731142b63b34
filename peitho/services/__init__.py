"""
Peitho services: container routing, image pipeline and the sweeper.
"""
