# Export the gateway and its building blocks
from .brokers import BrokerAddress as BrokerAddress
from .brokers import BrokerSet as BrokerSet
from .brokers import InvalidAddress as InvalidAddress
from .commands import CreateCommand as CreateCommand
from .commands import MissingKeyError as MissingKeyError
from .config import GatewayConfig as GatewayConfig
from .dataset import Dataset as Dataset
from .dataset import DatasetError as DatasetError
from .dataset import Producer as Producer
from .gateway import Gateway as Gateway

# Export observability helpers
from .observability import logger as logger
from .observability import metrics as metrics
from .relation import Relation as Relation
from .roles import InvalidRole as InvalidRole
from .roles import Role as Role
