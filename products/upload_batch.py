"""
Catalog - Asset Upload Batch
============================
Sekwencyjny upload wielu zasobów z zatrzymaniem na pierwszym błędzie.

Batch niczego nie usuwa - zwraca częściową listę wyników razem z błędem,
a sprzątanie należy do wywołującego (CompensatingWriteCoordinator).
"""

import logging
from typing import List, Optional, Sequence, Tuple

from core.exceptions import UploadError
from products.assets import AssetFile, UploadOutcome

logger = logging.getLogger(__name__)


class AssetUploadBatch:
    """
    Upload N plików, jeden put na plik, ściśle po kolei.

    Usage:
        batch = AssetUploadBatch(storage)
        outcomes, error = batch.upload_all(files)
        if error:
            ...  # outcomes = pliki zapisane przed błędem
    """

    def __init__(self, store, bucket: str = None):
        """
        Args:
            store: Klient Storage z metodą put(data, filename, role, bucket)
            bucket: Bucket docelowy (domyślnie bucket klienta)
        """
        self.store = store
        self.bucket = bucket or getattr(store, 'bucket', None)

    def upload_all(
        self,
        files: Sequence[AssetFile],
        into: List[UploadOutcome] = None
    ) -> Tuple[List[UploadOutcome], Optional[UploadError]]:
        """
        Wyślij pliki w podanej kolejności.

        Args:
            files: Pliki w kolejności uploadu
            into: Lista, do której dopisywany jest każdy udany upload
                  (widoczna dla wywołującego także po przerwaniu)

        Returns:
            Tuple (outcomes, error):
            - (wszystkie wyniki, None) gdy wszystko się udało
            - (wyniki sprzed błędu, UploadError) przy pierwszym błędzie
        """
        outcomes: List[UploadOutcome] = into if into is not None else []
        start = len(outcomes)

        for index, asset in enumerate(files):
            try:
                success, result = self.store.put(
                    asset.data,
                    asset.filename,
                    role=asset.role.value,
                    bucket=self.bucket
                )
            except Exception as e:
                success, result = False, str(e)

            if not success:
                logger.error(
                    f"[UPLOAD] File {index + 1}/{len(files)} failed: {asset.filename} - {result}"
                )
                error = UploadError(asset.filename, result)
                error.details["uploaded_count"] = len(outcomes) - start
                return outcomes, error

            outcomes.append(UploadOutcome(
                url=result,
                bucket=self.bucket,
                role=asset.role,
                metadata=dict(asset.metadata),
            ))

        if files:
            logger.info(f"[UPLOAD] Uploaded {len(outcomes) - start}/{len(files)} files")

        return outcomes, None
