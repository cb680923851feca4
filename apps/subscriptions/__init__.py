"""
Subscriptions App

Platform plans (Basic, Professional, Enterprise) that businesses pay
Kopqela for, the subscription lifecycle and the plan limits the rest
of the platform checks.
"""
