"""
Numbly - arithmetic learning backend
"""
