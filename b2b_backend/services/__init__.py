"""
Business logic for the B2B network API.

- accounts: registration, login, roles and account lifecycle
- profiles: personal profiles, rule-driven validation and search
- business_profiles, business_sections: company pages and their sections
- invitations, members, owner: team management
- jobs, applications: job postings and applications
- connections: connection requests and notifications
- storage: object storage for uploaded files
"""
