from typing import Any, Dict, List, Optional

DONATION_COLS = """id, donor_id, case_id, welfare_id, amount, amount_usd, eth_usd_rate,
    tx_hash, status, donor_address, organization_address, message, created_at"""


def insert_donation(
    cur,
    *,
    donor_id: str,
    case_id: str,
    welfare_id: str,
    amount: float,
    amount_usd: float,
    eth_usd_rate: float,
    tx_hash: str,
    donor_address: str | None = None,
    organization_address: str | None = None,
    message: str | None = None,
) -> Dict[str, Any]:
    cur.execute(
        f"""
        INSERT INTO donations (donor_id, case_id, welfare_id, amount, amount_usd,
                               eth_usd_rate, tx_hash, status, donor_address,
                               organization_address, message)
        VALUES (%s, %s, %s, %s, %s, %s, %s, 'Confirmed', %s, %s, %s)
        RETURNING {DONATION_COLS}
        """,
        (
            donor_id,
            case_id,
            welfare_id,
            amount,
            amount_usd,
            eth_usd_rate,
            tx_hash,
            donor_address,
            organization_address,
            message or "",
        ),
    )
    return dict(cur.fetchone())


def get_donation_by_tx_hash(cur, tx_hash: str) -> Optional[Dict[str, Any]]:
    cur.execute(f"SELECT {DONATION_COLS} FROM donations WHERE tx_hash = %s", (tx_hash,))
    row = cur.fetchone()
    return dict(row) if row else None


def list_donations_by_donor(cur, donor_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        """
        SELECT d.id, d.case_id, c.title AS case_title, d.welfare_id,
               w.name AS welfare_name, d.amount, d.amount_usd, d.tx_hash,
               d.status, d.created_at
        FROM donations d
        LEFT JOIN cases c ON c.id = d.case_id
        LEFT JOIN welfare_organizations w ON w.id = d.welfare_id
        WHERE d.donor_id = %s
        ORDER BY d.created_at DESC
        """,
        (donor_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_donations_by_welfare(cur, welfare_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        """
        SELECT d.id, d.donor_id, dn.name AS donor_name, d.case_id,
               c.title AS case_title, d.amount, d.amount_usd, d.tx_hash,
               d.donor_address, d.created_at
        FROM donations d
        LEFT JOIN cases c ON c.id = d.case_id
        LEFT JOIN donors dn ON dn.id = d.donor_id
        WHERE d.welfare_id = %s
        ORDER BY d.created_at DESC
        """,
        (welfare_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def list_donations_for_case(cur, case_id: str) -> List[Dict[str, Any]]:
    cur.execute(
        f"""
        SELECT {DONATION_COLS} FROM donations
        WHERE case_id = %s AND status = 'Confirmed'
        ORDER BY created_at DESC
        """,
        (case_id,),
    )
    return [dict(r) for r in cur.fetchall()]


def count_donations_for_case(cur, case_id: str) -> int:
    cur.execute("SELECT COUNT(*) AS n FROM donations WHERE case_id = %s", (case_id,))
    return int(cur.fetchone()["n"])
