"""
Test suite for the synchronization pipeline.

This package contains tests for the components that reconcile split
dictionaries with the git repository:
- Path sharding and label sanitizing
- Content diff calculation against the index
- Detection of external modifications in the working tree
- Staging of change sets and managed file placeholders
- Reconstruction of dictionaries from the index and from revisions
"""
