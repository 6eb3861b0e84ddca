"""Describes the pantry domain. Centres around the shopping plan.

A plan starts from what the user has on hand, asks a language model for
recipes, and works out what is still missing.

Why is this awkward?

- Recipe creation and ingredient extraction happen behind model apis.
- The model output is text, sometimes JSON and sometimes not.
- The pantry itself lives in an external store.

Each of those is a collaborator that can be faked in tests.
"""
