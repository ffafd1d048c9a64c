"""
File-based WhatsApp sink for dev/test.

Drop-in replacement for WhatsAppGateway: same send_template signature, writes
.txt files to disk instead of calling the Cloud API. Files are grouped by
send_id so you can inspect what each drive notification would have sent.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from app.services.errors import DispatchError

logger = logging.getLogger(__name__)


class DevWhatsAppGateway:
    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)

    def send_template(
        self,
        to: str,
        template_name: str,
        language_code: str,
        components: Optional[List[Any]] = None,
        send_id: Optional[str] = None,
    ) -> None:
        """
        Layout:
            {output_dir}/{send_id}/{to}.txt          when send_id is given
            {output_dir}/_ungrouped/{to}_{ts}.txt    when send_id is None
        """
        if not to:
            raise DispatchError("empty recipient number")

        now = datetime.now(timezone.utc)
        ts = now.strftime("%Y-%m-%dT%H-%M-%S")

        if send_id:
            folder = self.output_dir / send_id
            file_path = folder / f"{to}.txt"
        else:
            folder = self.output_dir / "_ungrouped"
            file_path = folder / f"{to}_{ts}.txt"

        folder.mkdir(parents=True, exist_ok=True)

        envelope = (
            f"TO: {to}\nAT: {now.isoformat()}\nTEMPLATE: {template_name} ({language_code})\n"
            f"---\n{json.dumps(components or [], indent=2)}\n"
        )
        if file_path.exists():
            envelope = f"\n---\n{envelope}"

        with open(file_path, "a", encoding="utf-8") as f:
            f.write(envelope)

        logger.info("dev send_template → %s", file_path)
