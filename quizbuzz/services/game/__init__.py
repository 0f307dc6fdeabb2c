"""Game domain services: question pool, buzzer, room slots and the
coordinator that owns them.

Socket handlers and HTTP routes talk to the coordinator only, keeping
transport concerns separated from the game state itself.
"""
