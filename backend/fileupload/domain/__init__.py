"""Domain layer: upload policy, validation and ports"""
