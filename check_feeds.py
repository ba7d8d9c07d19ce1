from utils import FEEDS, retrieve_flattened
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def main():
    try:
        logger.info("Starting feed check...")
        for kind in FEEDS:
            records = retrieve_flattened(kind)
            metadata = records[0]
            logger.info(f"{kind}: {len(records) - 1} observations, latest data up to {metadata['dateEnd']}")
        logger.info("Feed check completed successfully")
    except Exception as e:
        logger.error(f"Error checking feeds: {str(e)}")
        raise

if __name__ == "__main__":
    main()
