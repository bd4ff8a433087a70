"""
Customers API module.

Scope:
- List / count / search / fetch customers with field selection and paging
- Create / update / soft-delete customers
- Billing + shipping address mappings, role mappings, passwords, generic attributes
"""
