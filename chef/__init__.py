"""Recommends dishes from a list of ingredients. Centres around the
`RecommendationOrchestrator`.

Why is this hard?

- The dishes come from a large language model as free text. We ask for a
  structure, we do not always get one.
- Every dish then fans out to a nutrition api and an image api. These finish in
  whatever order they like.
- The collection the user is looking at has one writer, the orchestrator.

The apis are behind small clients so they can be faked.
"""
