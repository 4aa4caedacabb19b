from codeassist.models.project_file import SourceCodeFile

__all__ = ["SourceCodeFile"]
