"""
Business services: authorization policy, photo storage, task and user rules.
"""
