"""Upload HTTP endpoints, staging and response rendering"""
