"""
Algorithms of the download benchmark: key enumeration and object retrieval.
"""
