"""
Construction project intake: form state, validation, AI analysis and Supabase persistence.
"""
