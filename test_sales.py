"""
Test script to verify sales reports
"""
import pandas as pd


def make_sales():
    from data_processor import rows_to_frame, process_sales_rows
    from config import SALES_COLUMNS

    values = [
        SALES_COLUMNS,
        ["05/01/2024", "SAL-001", "C1", "", "Alpha", "Dubai", "M1", "Mo", "Rep1",
         "P1", "111", "Chips A", "", "1.5", "2", "100", "50"],
        ["05/01/2024", "SAL-001", "C1", "", "Alpha", "Dubai", "M1", "Mo", "Rep1",
         "P2", "222", "Chips B", "", "0", "3", "60", "20"],
        ["20/02/2024", "SAL-002", "C2", "", "Beta", "Sharjah", "M2", "Mo", "Rep2",
         "P1", "111", "Chips A", "", "1.5", "2", "40", "20"],
        ["21/02/2024", "RSAL-001", "C1", "", "Alpha", "Dubai", "M1", "Mo", "Rep1",
         "P1", "111", "Chips A", "", "1.5", "2", "-20", "-10"],
        # no product: not a sales line
        ["21/02/2024", "SAL-003", "C3", "", "Gamma", "Dubai", "M1", "Mo", "Rep1",
         "", "", "", "", "", "", "75", "5"],
    ]
    return process_sales_rows(rows_to_frame(values, SALES_COLUMNS))


def make_analyzer():
    from analytics import SalesAnalyzer
    return SalesAnalyzer(make_sales())


def test_overview_metrics():
    metrics = make_analyzer().overview_metrics()

    assert metrics["total_amount"] == 180.0
    assert metrics["total_qty"] == 80.0
    assert metrics["total_customers"] == 2
    assert metrics["total_products"] == 2
    assert metrics["avg_amount_per_sale"] == 45.0
    assert metrics["avg_monthly_amount"] == 90.0
    assert metrics["avg_monthly_qty"] == 40.0

    print("PASS: Overview metrics tests passed")


def test_filters():
    analyzer = make_analyzer()

    assert len(analyzer.filter()) == 4
    assert len(analyzer.filter(area="Dubai")) == 3
    assert len(analyzer.filter(year=2024, month=2)) == 2
    assert len(analyzer.filter(year=2023)) == 0
    assert len(analyzer.filter(date_from="2024-02-21")) == 1
    assert len(analyzer.filter(date_to="20/02/2024")) == 3
    assert len(analyzer.filter(sales_rep="Rep2", market="M2")) == 1
    assert analyzer.filter(search="beta")["customerName"].tolist() == ["Beta"]
    assert len(analyzer.filter(search="rsal")) == 1

    print("PASS: Sales filter tests passed")


def test_monthly_sales():
    analyzer = make_analyzer()

    monthly = analyzer.monthly_sales()
    assert len(monthly) == 12
    assert monthly["monthKey"].iloc[0] == "2023-03"
    assert monthly["monthKey"].iloc[-1] == "2024-02"
    assert monthly["month"].iloc[-1] == "Feb 24"
    assert monthly["amount"].iloc[-2] == 160.0
    assert monthly["amount"].iloc[-1] == 20.0
    assert monthly["amountDiff"].iloc[-1] == -140.0
    assert monthly["amount"].iloc[0] == 0.0

    present = analyzer.monthly_sales(fill_last_12=False)
    assert present["monthKey"].tolist() == ["2024-01", "2024-02"]
    assert present["amountDiff"].tolist() == [0.0, -140.0]

    print("PASS: Monthly sales tests passed")


def test_top_products_and_customers():
    analyzer = make_analyzer()

    products = analyzer.top_products(10)
    assert products["productId"].tolist() == ["P1", "P2"]
    first = products.iloc[0]
    assert first["totalAmount"] == 120.0
    assert first["totalQty"] == 60.0
    assert first["barcode"] == "111"
    assert first["products"] == "Chips A"
    assert first["transactions"] == 3

    assert len(analyzer.top_products(1)) == 1

    customers = analyzer.top_customers(10)
    assert customers["customer"].tolist() == ["Alpha", "Beta"]
    assert customers.iloc[0]["totalAmount"] == 140.0
    assert customers.iloc[0]["transactions"] == 2

    by_qty = analyzer.top_customers(10, by="totalQty")
    assert by_qty["totalQty"].tolist() == [60.0, 20.0]

    print("PASS: Top products and customers tests passed")


def test_invoices():
    from analytics import SalesAnalyzer

    analyzer = make_analyzer()
    invoices = analyzer.invoices()
    assert invoices["invoiceNumber"].tolist() == ["RSAL-001", "SAL-002", "SAL-001"]

    sal_001 = invoices.set_index("invoiceNumber").loc["SAL-001"]
    assert sal_001["amount"] == 160.0
    assert sal_001["qty"] == 70.0
    assert sal_001["productsCount"] == 2
    assert sal_001["avgCost"] == 1.5  # zero-cost lines are ignored
    assert sal_001["avgPrice"] == 2.5

    assert analyzer.invoices("sales")["invoiceNumber"].tolist() == ["SAL-002", "SAL-001"]
    assert analyzer.invoices("returns")["invoiceNumber"].tolist() == ["RSAL-001"]

    stats = SalesAnalyzer.invoice_stats(invoices)
    assert stats == {"net_sales": 180.0, "total_sales": 200.0, "total_returns": 20.0,
                     "sales_count": 2, "returns_count": 1}
    assert SalesAnalyzer.invoice_stats(invoices.iloc[0:0])["net_sales"] == 0.0

    print("PASS: Invoice tests passed")


def test_sales_by_day():
    daily = make_analyzer().sales_by_day()

    assert daily["date"].tolist() == ["21/02/2024", "20/02/2024", "05/01/2024"]
    return_day = daily.iloc[0]
    assert return_day["amount"] == -20.0
    assert return_day["invoicesCount"] == 1
    assert return_day["salInvoicesCount"] == 0

    first_day = daily.iloc[2]
    assert first_day["invoicesCount"] == 1
    assert first_day["productsCount"] == 2
    assert first_day["salProductsCount"] == 2
    assert first_day["customersCount"] == 1

    print("PASS: Sales by day tests passed")


def test_avg_sales_by_day():
    averages = make_analyzer().avg_sales_by_day()

    assert averages["monthKey"].tolist() == ["2024-02", "2024-01"]
    feb = averages.iloc[0]
    assert feb["monthYear"] == "FEB 2024"
    assert feb["days"] == 2
    assert feb["avgAmount"] == 10.0
    assert feb["avgInvoices"] == 0.5
    assert averages.iloc[1]["avgAmount"] == 160.0

    print("PASS: Average sales by day tests passed")


def test_group_stats():
    areas = make_analyzer().group_stats("area")

    assert areas["name"].tolist() == ["Dubai", "Sharjah"]
    dubai = areas.iloc[0]
    assert dubai["totalAmount"] == 140.0
    assert dubai["totalQty"] == 60.0
    assert dubai["invoiceCount"] == 3
    assert dubai["averageMonthly"] == 70.0
    assert dubai["averageMonthlyGrowth"] == -180.0  # 160 in Jan, -20 in Feb
    assert abs(dubai["percentageOfTotal"] - 140 / 180 * 100) < 1e-9
    assert areas.iloc[1]["averageMonthlyGrowth"] == 0.0  # a single month has no growth
    assert abs(areas["percentageOfTotal"].sum() - 100.0) < 1e-9

    merchandisers = make_analyzer().group_stats("merchandiser")
    assert merchandisers["name"].tolist() == ["Mo"]
    assert merchandisers.iloc[0]["averageMonthly"] == 90.0
    assert merchandisers.iloc[0]["averageMonthlyGrowth"] == -140.0

    assert make_analyzer().group_stats("salesRep")["name"].tolist() == ["Rep1", "Rep2"]

    print("PASS: Group statistics tests passed")


def test_customers():
    from analytics import SalesAnalyzer

    analyzer = SalesAnalyzer(make_sales(), today=pd.Timestamp(2024, 3, 15))
    customers = analyzer.customers()

    assert customers["customerKey"].tolist() == ["C1", "C2"]
    alpha = customers.iloc[0]
    assert alpha["customer"] == "Alpha"
    assert alpha["totalAmount"] == 140.0
    assert alpha["productsCount"] == 2
    assert alpha["transactions"] == 1  # the return is not a transaction
    # Jan through Mar
    assert abs(alpha["averageAmount"] - 140 / 3) < 1e-9
    assert alpha["averageQty"] == 20.0
    assert customers.iloc[1]["averageAmount"] == 20.0

    # blank main names fall back to the branch name
    assert analyzer.customers(by_main_name=True)["customerKey"].tolist() == ["Alpha", "Beta"]

    print("PASS: Customer totals tests passed")


def test_customer_details():
    details = make_analyzer().customer_details("C1")

    assert details["name"] == "Alpha"
    assert details["monthly"]["monthKey"].tolist() == ["2024-02", "2024-01"]
    assert details["monthly"]["month"].tolist() == ["Feb 24", "Jan 24"]
    assert details["monthly"]["amount"].tolist() == [-20.0, 160.0]
    assert details["products"]["productKey"].tolist() == ["P1", "P2"]
    assert details["products"]["amount"].tolist() == [80.0, 60.0]

    metrics = details["metrics"]
    assert metrics["totalAmount"] == 140.0
    assert metrics["uniqueCount"] == 2
    assert metrics["uniqueMonths"] == 2
    assert metrics["avgMonthlyAmount"] == 70.0

    searched = make_analyzer().customer_details("C1", "chips b")
    assert searched["products"]["productKey"].tolist() == ["P2"]
    assert searched["metrics"]["totalAmount"] == 60.0

    missing = make_analyzer().customer_details("nobody")
    assert missing["name"] == "nobody"
    assert missing["products"].empty
    assert missing["metrics"]["avgMonthlyAmount"] == 0.0

    print("PASS: Customer detail tests passed")


def test_products():
    analyzer = make_analyzer()
    products = analyzer.products()

    assert products["productKey"].tolist() == ["P1", "P2"]
    assert products.iloc[0]["barcode"] == "111"
    assert products.iloc[0]["amount"] == 120.0
    assert products.iloc[0]["qty"] == 60.0
    assert products.iloc[0]["transactions"] == 2

    details = analyzer.product_details("P1")
    assert details["name"] == "Chips A"
    assert details["customers"]["customerKey"].tolist() == ["C1", "C2"]
    assert details["customers"]["amount"].tolist() == [80.0, 40.0]
    assert details["customers"].iloc[0]["transactions"] == 2
    assert details["metrics"]["uniqueCount"] == 2
    assert details["metrics"]["totalAmount"] == 120.0
    assert details["monthly"]["amount"].tolist() == [20.0, 100.0]

    assert analyzer.product_details("P1", "beta")["customers"]["customer"].tolist() == ["Beta"]

    print("PASS: Product totals tests passed")


def test_inactive_customers():
    from analytics import SalesAnalyzer, _inactive_status

    assert _inactive_status(10) == "At Risk"
    assert _inactive_status(29) == "At Risk"
    assert _inactive_status(30) == "Inactive"
    assert _inactive_status(59) == "Inactive"
    assert _inactive_status(60) == "Lost"

    analyzer = SalesAnalyzer(make_sales(), today=pd.Timestamp(2024, 3, 15))
    inactive = analyzer.inactive_customers()

    assert inactive["customerName"].tolist() == ["Alpha", "Beta"]
    alpha = inactive.iloc[0]
    assert alpha["lastPurchaseDate"] == pd.Timestamp(2024, 1, 5)  # the later return is ignored
    assert alpha["daysSinceLastPurchase"] == 70
    assert alpha["status"] == "Lost"
    assert alpha["totalAmount"] == 160.0
    assert alpha["orderCount"] == 1
    assert alpha["averageOrderValue"] == 160.0
    assert inactive.iloc[1]["daysSinceLastPurchase"] == 24
    assert inactive.iloc[1]["status"] == "At Risk"

    assert analyzer.inactive_customers(status="At Risk")["customerName"].tolist() == ["Beta"]
    assert analyzer.inactive_customers(min_days=30)["customerName"].tolist() == ["Alpha"]
    assert analyzer.inactive_customers(min_amount=100)["customerName"].tolist() == ["Alpha"]

    # bought within the last ten days: not listed
    recent = SalesAnalyzer(make_sales(), today=pd.Timestamp(2024, 2, 25)).inactive_customers()
    assert recent["customerName"].tolist() == ["Alpha"]
    assert recent.iloc[0]["status"] == "Inactive"

    print("PASS: Inactive customer tests passed")


def test_empty_sales():
    from analytics import SalesAnalyzer
    from data_processor import rows_to_frame, process_sales_rows
    from config import SALES_COLUMNS

    analyzer = SalesAnalyzer(process_sales_rows(rows_to_frame([], SALES_COLUMNS)))
    assert analyzer.overview_metrics()["total_amount"] == 0.0
    assert analyzer.monthly_sales().empty
    assert analyzer.top_products().empty
    assert analyzer.invoices().empty
    assert analyzer.sales_by_day().empty
    assert analyzer.avg_sales_by_day().empty
    assert analyzer.group_stats("area").empty
    assert analyzer.customers().empty
    assert analyzer.products().empty
    assert analyzer.inactive_customers().empty
    assert analyzer.customer_details("C1")["monthly"].empty
    assert analyzer.product_details("P1")["metrics"]["totalAmount"] == 0.0
    assert isinstance(analyzer.filter(area="Dubai"), pd.DataFrame)

    print("PASS: Empty sales tests passed")


def main():
    """Run all tests."""
    print("Running sales report tests...")

    try:
        test_overview_metrics()
        test_filters()
        test_monthly_sales()
        test_top_products_and_customers()
        test_invoices()
        test_sales_by_day()
        test_avg_sales_by_day()
        test_group_stats()
        test_customers()
        test_customer_details()
        test_products()
        test_inactive_customers()
        test_empty_sales()

        print("\nSUCCESS: All sales report tests passed!")

    except Exception as e:
        print(f"\nFAILED: Test failed: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
