"""
Lead triage pipeline.

A queue-mediated email processing pipeline that:
- Fetches unseen emails from IMAP
- Triages them with a fast Gemini classifier (lead vs noise)
- Runs deep structured extraction on confirmed leads
- Appends the finalized records to a JSON-lines stream
"""
