from .property_mapper import build_properties
from .resource_builder import build_resource
from .template_assembler import TemplateAssembler, BuildResult, build_template

__all__ = [
    'build_properties',
    'build_resource',
    'TemplateAssembler',
    'BuildResult',
    'build_template',
]
