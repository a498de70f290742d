"""
Test script to verify inventory stock, people holdings and transactions
"""
import pandas as pd
import pytest
from datetime import datetime


def make_products():
    return pd.DataFrame({
        "rowIndex": [2, 3],
        "barcode": ["111", "222"],
        "productName": ["Chipsy Salt", "Chipsy Chili"],
        "qtyPcs": [100, 48],
        "pcsInCtn": [10, 0],
        "price": [2.0, 1.0],
    })


def make_transfers():
    rows = [
        # (number, locFrom, locTo, barcode, qtyPcs)
        ("TRX-0001", "Main Inventory", "Ali", "111", 30),
        ("TRX-0002", "Ali", "Main Inventory", "111", 10),
        ("", "IN", "Sara", "222", 6),
        ("", "OUT", "Sara", "222", 12),
        ("TRX-0003", "Ali", "Sara", "111", 5),
    ]
    df = pd.DataFrame([{
        "user": "admin",
        "number": number,
        "date": "01/03/2024 10:00",
        "locFrom": loc_from,
        "locTo": loc_to,
        "customerName": "",
        "receiverName": "",
        "barcode": barcode,
        "productName": "",
        "qtyPcs": qty,
        "price": 2.0,
        "total": qty * 2.0,
        "description": "",
    } for number, loc_from, loc_to, barcode, qty in rows])
    return df.iloc[::-1].reset_index(drop=True)  # loaders return newest first


def make_analyzer():
    from analytics import InventoryAnalyzer
    return InventoryAnalyzer(make_products(), make_transfers())


class FakeTransferLog:
    def __init__(self, numbers):
        self.numbers = numbers
        self.appended = []

    def existing_numbers(self):
        return self.numbers

    def append_transfers(self, rows):
        self.appended.extend(rows)


def test_current_stock():
    stock = make_analyzer().current_stock().set_index("barcode")

    # 100 - 30 out + 10 back; person-to-person moves leave main stock alone
    assert stock.loc["111", "qtyPcs"] == 80
    assert stock.loc["111", "qtyCtns"] == 8.0
    # legacy IN adds, legacy OUT subtracts
    assert stock.loc["222", "qtyPcs"] == 42
    assert stock.loc["222", "qtyCtns"] == 42.0  # zero pcsInCtn counts as one

    print("PASS: Current stock tests passed")


def test_stock_summary_and_search():
    from analytics import InventoryAnalyzer

    analyzer = make_analyzer()
    summary = analyzer.stock_summary()
    assert summary == {"total_products": 2, "total_pcs": 122, "total_ctns": 50.0}

    assert analyzer.search_products("chili")["barcode"].tolist() == ["222"]
    assert analyzer.search_products("11")["barcode"].tolist() == ["111"]
    assert len(analyzer.search_products("")) == 2
    assert len(analyzer.search_transfers("sara")) == 3

    empty = InventoryAnalyzer(make_products().iloc[0:0], make_transfers().iloc[0:0])
    assert empty.stock_summary() == {"total_products": 0, "total_pcs": 0, "total_ctns": 0.0}
    assert empty.people_inventory().empty

    print("PASS: Stock summary tests passed")


def test_people_inventory():
    people = make_analyzer().people_inventory()

    assert people["person"].tolist() == ["Ali", "Sara"]
    ali = people.iloc[0]
    assert ali["totalPcs"] == 15  # 30 received, 10 returned, 5 handed to Sara
    assert ali["totalCtns"] == 1.5
    assert ali["productCount"] == 1

    sara = people.iloc[1]
    assert sara["totalPcs"] == 11  # legacy OUT 12 - legacy IN 6 + 5 from Ali
    assert sara["totalCtns"] == 6.5
    assert sara["productCount"] == 2

    print("PASS: People inventory tests passed")


def test_people_with_nothing_left_are_hidden():
    from analytics import InventoryAnalyzer

    transfers = make_transfers()
    transfers = transfers[transfers["number"].isin(["TRX-0001"])].copy()
    transfers = pd.concat([transfers, transfers.assign(number="TRX-0002", locFrom="Ali",
                                                       locTo="Main Inventory")])
    people = InventoryAnalyzer(make_products(), transfers).people_inventory()
    assert people.empty

    print("PASS: Zero holdings tests passed")


def test_person_and_transaction_details():
    analyzer = make_analyzer()

    details = analyzer.person_details("Sara")
    assert details["barcode"].tolist() == ["222", "111"]
    assert details["productName"].tolist() == ["Chipsy Chili", "Chipsy Salt"]
    assert details["qtyPcs"].tolist() == [6, 5]
    assert details.loc[1, "qtyCtns"] == 0.5

    assert analyzer.person_details("Nobody").empty

    rows = analyzer.transaction_details("TRX-0002")
    assert len(rows) == 1
    assert rows.loc[0, "locFrom"] == "Ali"

    transactions = analyzer.transactions()
    assert transactions["number"].tolist() == ["TRX-0003", "TRX-0002", "TRX-0001"]
    assert transactions.loc[2, "totalPcs"] == 30

    print("PASS: Detail tests passed")


def test_build_transaction():
    analyzer = make_analyzer()
    rows = analyzer.build_transaction(
        "OUT", " Ali ",
        [
            {"barcode": "111", "qty": 2, "unit": "CTN"},
            {"barcode": "222", "qty": 5, "unit": "pcs"},
            {"barcode": "", "qty": 3, "unit": "PCS"},
            {"barcode": "111", "qty": None, "unit": "CTN"},
        ],
        "TRX-0004",
        user="admin",
        when=datetime(2024, 3, 5, 14, 30),
    )

    assert len(rows) == 2
    first = rows[0]
    assert first["number"] == "TRX-0004"
    assert first["date"] == "05/03/2024 14:30"
    assert first["locFrom"] == "Main Inventory"
    assert first["locTo"] == "Ali"
    assert first["qtyPcs"] == 20
    assert first["price"] == 2.0
    assert first["total"] == 40.0
    assert first["productName"] == "Chipsy Salt"
    assert rows[1]["qtyPcs"] == 5

    back = analyzer.build_transaction("IN", "Ali", [{"barcode": "111", "qty": 4, "unit": "PCS"}],
                                      "TRX-0005")
    assert back[0]["locFrom"] == "Ali"
    assert back[0]["locTo"] == "Main Inventory"
    assert back[0]["user"] == "Unknown"

    print("PASS: Build transaction tests passed")


def test_build_transaction_rejects_bad_input():
    from analytics import TransactionError

    analyzer = make_analyzer()
    item = [{"barcode": "111", "qty": 1, "unit": "CTN"}]

    with pytest.raises(TransactionError):
        analyzer.build_transaction("MOVE", "Ali", item, "TRX-0004")
    with pytest.raises(TransactionError):
        analyzer.build_transaction("OUT", "  ", item, "TRX-0004")
    with pytest.raises(TransactionError):
        analyzer.build_transaction("OUT", "Ali", [{"barcode": "999", "qty": 1, "unit": "CTN"}], "TRX-0004")
    with pytest.raises(TransactionError):
        analyzer.build_transaction("OUT", "Ali", [{"barcode": "111", "qty": 0, "unit": "CTN"}], "TRX-0004")
    with pytest.raises(TransactionError):
        analyzer.build_transaction("OUT", "Ali", [], "TRX-0004")
    with pytest.raises(ValueError):
        analyzer.build_transaction("OUT", "Ali", [{"barcode": "111", "qty": 1, "unit": "BOX"}], "TRX-0004")

    print("PASS: Transaction validation tests passed")


def test_record_transaction():
    from analytics import record_transaction, TransactionError

    analyzer = make_analyzer()
    log = FakeTransferLog(["TRX-0001", "TRX-0003", "TRX-0002"])
    result = record_transaction(analyzer, log, "OUT", "Omar",
                                [{"barcode": "111", "qty": 1, "unit": "CTN"},
                                 {"barcode": "222", "qty": 2, "unit": "PCS"}],
                                user="admin")

    assert result["success"]
    assert result["transactionNumber"] == "TRX-0004"
    assert len(log.appended) == 2
    assert {r["number"] for r in log.appended} == {"TRX-0004"}

    empty_log = FakeTransferLog([])
    with pytest.raises(TransactionError):
        record_transaction(analyzer, empty_log, "OUT", "", [{"barcode": "111", "qty": 1, "unit": "CTN"}])
    assert empty_log.appended == []

    assert record_transaction(analyzer, empty_log, "IN", "Ali",
                              [{"barcode": "111", "qty": 1, "unit": "PCS"}])["transactionNumber"] == "TRX-0001"

    print("PASS: Record transaction tests passed")


def main():
    """Run all tests."""
    print("Running inventory tests...")

    try:
        test_current_stock()
        test_stock_summary_and_search()
        test_people_inventory()
        test_people_with_nothing_left_are_hidden()
        test_person_and_transaction_details()
        test_build_transaction()
        test_build_transaction_rejects_bad_input()
        test_record_transaction()

        print("\nSUCCESS: All inventory tests passed!")

    except Exception as e:
        print(f"\nFAILED: Test failed: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
