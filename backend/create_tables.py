from brokerlink.core.config import get_settings
from brokerlink.core.database import Database
import logging
logging.basicConfig(level=logging.INFO)

database = Database(get_settings().DATABASE_URL)
logging.info('Creating all tables...')
database.create_all()
logging.info('All tables created!')
database.dispose()
