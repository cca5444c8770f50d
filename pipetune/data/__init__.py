from .dataset import Role, SplitDataset, frame_schema
from .loader import DataLoader, load_table
