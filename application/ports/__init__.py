from application.ports.content_mutator import ContentMutator

__all__ = ["ContentMutator"]
