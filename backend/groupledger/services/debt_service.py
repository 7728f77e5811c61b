"""
Debt simplification: turn net balances into a short list of suggested transfers.
"""
from typing import Iterable, List
from groupledger.core.utils import EPSILON, round2
from groupledger.schemas.settlement import Balance, SuggestedDebt


def calculate_debts(balances: Iterable[Balance]) -> List[SuggestedDebt]:
    """
    Greedy minimum-cash-flow matching of debtors to creditors.

    Both sides are sorted by amount, largest first; ties keep their input
    order so the same balances always give the same suggestions. The result is
    advisory: any payer/payee pair may still be settled directly.
    """
    debtors = []
    creditors = []
    for b in balances:
        if b.net < -EPSILON:
            debtors.append([b, -b.net])
        elif b.net > EPSILON:
            creditors.append([b, b.net])

    # list.sort is stable with reverse=True
    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    debts = []
    i = 0
    j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, debt_amount = debtors[i]
        creditor, cred_amount = creditors[j]

        transfer = min(debt_amount, cred_amount)
        if transfer > EPSILON:
            debts.append(SuggestedDebt(
                from_member=debtor.member_id,
                from_name=debtor.display_name,
                to_member=creditor.member_id,
                to_name=creditor.display_name,
                amount=round2(transfer),
            ))

        debtors[i][1] = debt_amount - transfer
        creditors[j][1] = cred_amount - transfer

        if debtors[i][1] < EPSILON:
            i += 1
        if creditors[j][1] < EPSILON:
            j += 1

    return debts
