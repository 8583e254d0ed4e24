"""Services Layer — the imperative shell around core/ rules.

Invariants:
    - One module per component (identity, membership, directory, ledger,
      reactions, typing, feed)
    - Every conversation-scoped operation passes membership_registry.require_membership
    - Mutations commit exactly once; reads never commit
"""
