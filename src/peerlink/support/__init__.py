"""
Small, application-neutral helpers: observer lists and value-object equality.
"""
