"""Availability scheduling engine.

Everything in this package except ``reconciler.Reconciler`` is pure and safe
to call from any request thread.
"""
