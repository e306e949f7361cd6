"""
Core Package
============

Data model, error types and the two input parsers.

Modules:
- models.py: RuleDocument, Location, Finding
- nodes.py: Names, paths and identities of selected lxml nodes
- errors.py: Exception hierarchy
- schema_parser.py: Schematron text -> RuleDocument
- document_loader.py: XML text -> SubjectDocument (lxml tree + locations)
- rule_serializer.py: RuleDocument -> Schematron text
- settings.py: Constants
"""
