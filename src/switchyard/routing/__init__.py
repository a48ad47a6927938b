"""Routing — pattern compilation and an ordered, first-match-wins route table.

Routes are registered during setup; the table freezes with the app.
"""
