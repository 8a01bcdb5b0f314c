from .content_kind import ContentKind
from .arm_template import ArmResource, ArmTemplate
from .deployment_config import DeploymentConfig, ConnectorSetting, parse_deployment_config
from .diagnostics import Diagnostic, Diagnostics
from .source_document import SourceDocument

__all__ = [
    'ContentKind',
    'ArmResource',
    'ArmTemplate',
    'DeploymentConfig',
    'ConnectorSetting',
    'parse_deployment_config',
    'Diagnostic',
    'Diagnostics',
    'SourceDocument',
]
