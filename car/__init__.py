"""
car: create tar and zip archives from the command line
"""
