"""Chat feature package: entities, repositories, DTOs, controller and router.

One POST turns a user message into an assistant reply and stores both sides
of the exchange; one GET returns the stored history of a session.
"""
